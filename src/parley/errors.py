BALANCE_EXHAUSTED_CODE = 4011


class ParleyError(Exception):
    pass


class NoActiveChatError(ParleyError):
    pass


class SendInProgressError(ParleyError):
    pass


class ChatStreamError(ParleyError):
    pass


class InsufficientBalanceError(ChatStreamError):
    def __init__(self, code: int = BALANCE_EXHAUSTED_CODE):
        self.code = code
        super().__init__(
            f"Insufficient token balance, please top up and try again (error code: {code})"
        )


class RequestFailedError(ChatStreamError):
    def __init__(self, status: int, reason: str = "", detail: str = ""):
        self.status = status
        self.reason = reason
        self.detail = detail
        message = f"API request failed: {status} {reason}".rstrip()
        if detail:
            message = f"{message}. {detail}"
        super().__init__(message)
