class ProvisioningError(Exception):
    """Creating an account failed; the message is safe to show to the user."""

    def __init__(self, message, run_id=None):
        super().__init__(message)
        self.run_id = run_id
