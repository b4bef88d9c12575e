class GeneratorError(Exception):
    pass


class SourceError(GeneratorError):
    """The record source could not be opened or queried."""


class OutputError(GeneratorError):
    """An artifact could not be written; `stage` names the emitter."""

    def __init__(self, stage: str, path: str, cause: Exception):
        self.stage = stage
        self.path = path
        self.cause = cause
        super().__init__(f"{stage}: cannot write {path}: {cause}")
