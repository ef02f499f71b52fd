"""
Error taxonomy shared by every stage of the pipeline.

- ConfigurationError: bad shapes, dimensions or config values. Raised eagerly.
- FrameDecodeError: a malformed/short camera frame. Callers drop the frame.
- EngineError: the inference engine failed or returned an unexpected shape.
"""


class ConfigurationError(ValueError):
    pass


class FrameDecodeError(ValueError):
    pass


class EngineError(RuntimeError):
    pass
