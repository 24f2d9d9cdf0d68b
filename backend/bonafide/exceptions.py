class LifecycleError(Exception):
    """A request could not move as asked. Correctable by the caller."""

    code = 'invalid_request'


class IllegalTransition(LifecycleError):
    code = 'illegal_transition'

    def __init__(self, message, current_status=None, target_status=None, actor_role=None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status
        self.actor_role = actor_role


class StaleRequestState(Exception):
    """The stored status changed between the read and the conditional write.

    Raised by the persistence step, never by validation; callers should re-read
    the request and decide again.
    """

    def __init__(self, request_id, expected_status):
        super().__init__(f'Request {request_id} is no longer "{expected_status}"; reload and try again.')
        self.request_id = request_id
        self.expected_status = expected_status
