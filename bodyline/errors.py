"""
Error kinds raised by the posture pipeline.

Callers treat all of them as recoverable: the analyzer turns detector and image
problems into an empty result, the HTTP layer turns them into status codes.
"""


class ErrorCodes:
	UNKNOWN_ERROR = 10000
	VALIDATION_ERROR = 10002

	DETECTION_UNAVAILABLE = 20004
	INVALID_IMAGE_DIMENSIONS = 20010
	DRAWING_SURFACE_FAILURE = 20011
	UNKNOWN_POSTURE_LINE = 20012


class PostureError(Exception):
	"""Base class for all posture analysis errors."""

	def __init__(self, message, code=500, error_code=ErrorCodes.UNKNOWN_ERROR):
		self.message = message
		self.code = code  # HTTP status code
		self.error_code = error_code
		super().__init__(self.message)


class DetectionUnavailable(PostureError):
	"""The pose detector could not be invoked (missing backend, inference error)."""

	def __init__(self, message="Pose detector unavailable"):
		super().__init__(message, code=503, error_code=ErrorCodes.DETECTION_UNAVAILABLE)


class InvalidImageDimensions(PostureError):
	def __init__(self, width, height):
		self.width = width
		self.height = height
		message = f"Invalid image dimensions: {width}x{height}"
		super().__init__(message, code=400, error_code=ErrorCodes.INVALID_IMAGE_DIMENSIONS)


class DrawingSurfaceFailure(PostureError):
	def __init__(self, message="Could not create drawing surface"):
		super().__init__(message, code=500, error_code=ErrorCodes.DRAWING_SURFACE_FAILURE)


class UnknownPostureLine(PostureError):
	def __init__(self, name):
		message = f"Unknown posture line: {name!r}"
		super().__init__(message, code=400, error_code=ErrorCodes.UNKNOWN_POSTURE_LINE)
