class NotifyError(Exception):
    """Base for failures that abort the notification."""

class ConfigError(NotifyError):
    pass

class ApiError(NotifyError):
    pass

class RunLookupError(ApiError):
    pass

class TransportError(NotifyError):
    pass

class JobNotFound(Exception):
    """Current job missing from the run's job list. Resolved to a failed status."""

    def __init__(self, job_name: str):
        super().__init__(f"job {job_name!r} not found in workflow run")
        self.job_name = job_name
