class ChainRpcError(Exception):
    pass


class ExecutionRevertedError(ChainRpcError):
    def __init__(self, reason: str = "", data: bytes = b"") -> None:
        super().__init__(f"execution reverted: {reason}" if reason else "execution reverted")
        self.reason = reason
        self.data = data


class MissingFunctionError(ChainRpcError):
    pass


class LogRangeTooLargeError(ChainRpcError):
    pass
