# rotator_bot/data/constants.py
from enum import Enum

# Number of new camera angles produced per run.
VIEW_COUNT = 3

ARCHIVE_FILE_NAME = "rotated-images.zip"


class RotationMode(str, Enum):
    """Which instruction template is sent to the prompt model."""
    SCENE = "scene"  # move the virtual camera through the scene
    OBJECT = "object"  # rotate the subject on a white sweep


class RunStage(str, Enum):
    """Stages of a single rotation run."""
    IDLE = "idle"
    READING = "reading"
    ANALYZING = "analyzing"
    RENDERING = "rendering"
    COMPLETE = "complete"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Classification used to pick the user-facing error message."""
    INPUT = "input"
    MALFORMED_RESPONSE = "malformed_response"
    QUOTA = "quota"
    UNCLASSIFIED = "unclassified"
    ARCHIVE = "archive"
