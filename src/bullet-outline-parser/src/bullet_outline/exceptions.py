"""Exceptions raised while compiling an outline."""


class OutlineError(ValueError):
    """Base class for outline compilation errors."""


class OutlineStructureError(OutlineError):
    """Raised when a bullet is indented more than one level below its predecessor.

    The builder never guesses a parent for such a line.

    Attributes:
        line_index: 0-based index of the offending line
        depth: Depth of the offending line
        max_depth: Deepest depth allowed at that point
    """

    def __init__(self, line_index: int, depth: int, max_depth: int):
        self.line_index = line_index
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            f"Bad indentation at line {line_index + 1}: indented to level {depth} "
            f"but at most level {max_depth} is allowed here. "
            f"A bullet cannot be indented by more than one level at a time."
        )
