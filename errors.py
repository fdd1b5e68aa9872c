"""Errors raised by the vehicle lookup."""


class VehicleAPIError(Exception):
    """Base error. Carries the HTTP status the API should answer with."""

    status_code = 500

    def __init__(self, message, status_code=None, details=None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        body = {"error": self.message, "status": self.status_code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientInputError(VehicleAPIError):
    """Bad input from the caller, e.g. an empty registration."""

    status_code = 400


class ConfigurationError(VehicleAPIError):
    """A required secret or URL is not configured."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing configuration: {', '.join(self.missing)}")


class UpstreamHttpError(VehicleAPIError):
    """An upstream service answered with a non-2xx status or could not be reached."""

    def __init__(self, message, status_code, details=None):
        super().__init__(message, status_code, details)

    def __str__(self):
        if isinstance(self.details, str) and self.details:
            return f"{self.message}: {self.status_code} {self.details}"
        return f"{self.message}: {self.status_code}"


class UpstreamParseError(VehicleAPIError):
    """An upstream answered 2xx but the body was not JSON."""

    status_code = 502
