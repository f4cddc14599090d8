"""Domain exceptions raised by the service layer.

Routes translate these into HTTP responses; services never raise HTTPException
themselves so they stay usable outside a request.
"""


class CourseCatalogError(Exception):
    """Base exception for all course catalog errors."""

    status_code = 400


class UserAlreadyExistsError(CourseCatalogError):
    """Raised when registering a username or email that is already taken."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


class InvalidCredentialsError(CourseCatalogError):
    """Raised when the email is unknown or the password does not match."""

    def __init__(self):
        super().__init__("Invalid credentials")


class UserNotFoundError(CourseCatalogError):
    """Raised when a user id does not resolve to a stored user."""

    status_code = 404

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("User not found")


class CourseNotFoundError(CourseCatalogError):
    """Raised when a course id does not resolve to a stored course."""

    status_code = 404

    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__("Course not found")


class InvalidObjectIdError(CourseCatalogError):
    """Raised when an identifier is not a valid ObjectId string."""

    def __init__(self, kind: str, value: str):
        self.value = value
        super().__init__(f"Invalid {kind} id")


class AlreadyEnrolledError(CourseCatalogError):
    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__("Already enrolled in this course")


class AlreadyCompletedError(CourseCatalogError):
    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__("Course already completed")


class NotEnrolledError(CourseCatalogError):
    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__("Not enrolled in this course")


class CertificateNotFoundError(CourseCatalogError):
    status_code = 404

    def __init__(self, certificate_id: str):
        self.certificate_id = certificate_id
        super().__init__("Certificate not found")
