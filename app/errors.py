class LinkError(Exception):
    """Base class for link service failures."""


class InvalidShortCode(LinkError):
    def __init__(self, code):
        super().__init__("short_code invalid format")
        self.code = code


class ShortCodeConflict(LinkError):
    def __init__(self, code):
        super().__init__("short_code already exists")
        self.code = code


class LinkCreationFailed(LinkError):
    def __init__(self, attempts):
        super().__init__("could not create link after retries")
        self.attempts = attempts


class ExportFailed(LinkError):
    def __init__(self):
        super().__init__("export failed")
