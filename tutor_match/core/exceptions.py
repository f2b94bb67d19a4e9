class TutorMatchException(Exception):
    """Base exception for the tutor matching application"""
    pass


class ExternalServiceError(TutorMatchException):
    """Exception raised for external service errors"""
    pass


class TutorDirectoryError(ExternalServiceError):
    """Exception raised when the tutor directory page fetch fails"""
    pass


class ScheduleFetchError(ExternalServiceError):
    """Exception raised when a tutor's weekly schedule cannot be fetched"""
    pass


class UnknownFilterLabelError(TutorMatchException, ValueError):
    """Exception raised for a day or time block label outside the known vocabulary"""
    pass
