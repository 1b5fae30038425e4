class FriendlyError(RuntimeError):
    pass


class ConfigError(FriendlyError):
    pass


class AuthError(FriendlyError):
    pass


class NetworkError(FriendlyError):
    pass


class QuotaExceededError(NetworkError):
    pass


class TokenFileError(FriendlyError):
    pass


class OutputWriteError(FriendlyError):
    pass
