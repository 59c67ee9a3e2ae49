class ProviderError(RuntimeError):
    """Raised when the underlying LLM provider fails"""


class StoreError(RuntimeError):
    """Raised when a Supabase table call fails"""


class AuthError(RuntimeError):
    """Raised when credentials or tokens are rejected.

    Carries an HTTP-ish status so routes can map sign-up validation (400)
    and bad credentials (401) without inspecting messages.
    """

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code
