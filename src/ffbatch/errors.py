"""
Exception hierarchy for ffbatch.

Every error carries the process exit code the CLI returns for it.
Only EncodeError is handled per job; the others end the run.
"""

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_INPUT = 127
EXIT_INTERRUPTED = 130


class FFBatchError(Exception):
    """Base class for all ffbatch errors."""

    exit_code = EXIT_ERROR

    def __init__(self, message: str = "", details: str = ""):
        super().__init__(message)
        self.message = message
        self.details = details


class MissingDependencyError(FFBatchError):
    """A required external command is not installed."""

    def __init__(self, program: str):
        super().__init__(f'Program "{program}" is not installed.')
        self.program = program


class SourceDirError(FFBatchError):
    """The source directory does not exist."""


class NoFilesError(FFBatchError):
    """No supported video files were found."""


class ProbeError(FFBatchError):
    """Duration or frame rate could not be read from a source file."""


class NoInputError(FFBatchError):
    """An empty file/URL was handed to the prober."""

    exit_code = EXIT_NO_INPUT


class ChannelError(FFBatchError):
    """The progress status directory cannot be created or written."""


class EncodeError(FFBatchError):
    """ffmpeg failed for a single job."""

    def __init__(self, message: str, returncode: int = 1, details: str = ""):
        super().__init__(message, details)
        self.returncode = returncode


class Interrupted(FFBatchError):
    """The run was stopped by SIGINT or SIGHUP."""

    exit_code = EXIT_INTERRUPTED
