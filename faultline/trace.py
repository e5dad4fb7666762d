"""
faultline - Stack trace reconstruction.

Builds a human readable, numbered call-stack string from frame data. Used
when no native trace is available, e.g. for faults reported at shutdown.

Frames and their arguments are captured into plain data first
(``Frame`` and the ``Arg`` variants) and rendered afterwards. Exceptions
found among arguments carry their own traceback frames, which are rendered
recursively beneath the argument; nesting is capped at capture time.
"""

from __future__ import annotations

import inspect
import io
import socket
from dataclasses import dataclass
from types import FrameType
from typing import Any, Iterable, Optional, Union


MAX_NESTING = 5

INSTANCE_CALL = "->"
STATIC_CALL = "::"


# ============================================================================
# Argument variants
# ============================================================================

@dataclass(frozen=True, slots=True)
class ScalarArg:
    value: Any


@dataclass(frozen=True, slots=True)
class CompositeArg:
    """A container argument (list, tuple, dict, set)."""


@dataclass(frozen=True, slots=True)
class HandleArg:
    """A handle-like argument (file, socket, anything with a fileno)."""


@dataclass(frozen=True, slots=True)
class ObjectArg:
    """
    An object argument.

    ``frames`` is set only for exceptions whose traceback was captured.
    """
    type_name: str
    frames: Optional[tuple[Frame, ...]] = None


Arg = Union[ScalarArg, CompositeArg, HandleArg, ObjectArg]


@dataclass(frozen=True, slots=True)
class Frame:
    """
    One stack frame.

    Attributes:
        function: Function name
        file: Source file, None for code without a real file
        line: Line number within ``file``
        type_name: Class the function belongs to, if any
        call_type: ``"->"`` for instance calls, ``"::"`` for class/static calls
        args: Captured arguments, None when unknown
    """
    function: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    type_name: Optional[str] = None
    call_type: Optional[str] = None
    args: Optional[tuple[Arg, ...]] = None


# ============================================================================
# Capture
# ============================================================================

_SCALARS = (str, bytes, int, float, complex, bool, type(None))
_COMPOSITES = (list, tuple, dict, set, frozenset)


def _type_name(obj: Any) -> str:
    cls = obj if isinstance(obj, type) else type(obj)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _is_handle(value: Any) -> bool:
    if isinstance(value, (io.IOBase, socket.socket)):
        return True
    try:
        return callable(getattr(value, "fileno", None))
    except Exception:
        # Proxies whose attribute lookup fails outright are not handles.
        return False


def classify_arg(value: Any, depth: int = 0, max_depth: int = MAX_NESTING) -> Arg:
    """Convert a live argument value into an ``Arg`` variant."""
    if isinstance(value, _SCALARS):
        return ScalarArg(value)
    if isinstance(value, _COMPOSITES):
        return CompositeArg()
    if isinstance(value, BaseException):
        frames = None
        if depth < max_depth:
            frames = frames_from_exception(value, depth + 1, max_depth)
        return ObjectArg(_type_name(value), frames)
    if _is_handle(value):
        return HandleArg()
    return ObjectArg(_type_name(value))


def _real_file(filename: str) -> Optional[str]:
    # <string>, <stdin>, <frozen importlib._bootstrap> ...
    if not filename or filename.startswith("<"):
        return None
    return filename


def frame_from_python(
    frame: FrameType,
    line: Optional[int] = None,
    depth: int = 0,
    max_depth: int = MAX_NESTING,
) -> Frame:
    """
    Capture a live interpreter frame.

    A first parameter named ``self`` marks an instance call, ``cls`` a class
    call. Functions defined in a class body without either are static calls.
    """
    code = frame.f_code
    info = inspect.getargvalues(frame)

    names = list(info.args)
    type_name = None
    call_type = None

    if names and names[0] in ("self", "cls") and names[0] in info.locals:
        bound = info.locals[names[0]]
        type_name = _type_name(bound)
        call_type = INSTANCE_CALL if names[0] == "self" else STATIC_CALL
        names = names[1:]
    else:
        qualname = getattr(code, "co_qualname", code.co_name)
        owner, _, _ = qualname.rpartition(".")
        if owner and not owner.endswith("<locals>"):
            type_name = owner
            call_type = STATIC_CALL

    values = [info.locals.get(name) for name in names]
    if info.varargs:
        values.extend(info.locals.get(info.varargs, ()))
    if info.keywords and info.locals.get(info.keywords):
        values.append(info.locals[info.keywords])

    return Frame(
        function=code.co_name,
        file=_real_file(code.co_filename),
        line=line if line is not None else frame.f_lineno,
        type_name=type_name,
        call_type=call_type,
        args=tuple(classify_arg(v, depth, max_depth) for v in values),
    )


def capture_frames(skip: int = 0, max_depth: int = MAX_NESTING) -> list[Frame]:
    """
    Capture the current call stack, innermost frame first.

    Args:
        skip: Number of frames above the caller to drop
        max_depth: Nesting cap for exceptions found among arguments
    """
    frame = inspect.currentframe()
    try:
        # Drop capture_frames itself plus whatever the caller asks for.
        for _ in range(skip + 1):
            if frame is None:
                break
            frame = frame.f_back

        frames = []
        while frame is not None:
            frames.append(frame_from_python(frame, max_depth=max_depth))
            frame = frame.f_back
        return frames
    finally:
        del frame


def frames_from_exception(
    exc: BaseException,
    depth: int = 0,
    max_depth: int = MAX_NESTING,
) -> tuple[Frame, ...]:
    """Capture an exception's traceback, innermost frame first."""
    frames = []
    tb = exc.__traceback__
    while tb is not None:
        frames.append(frame_from_python(tb.tb_frame, tb.tb_lineno, depth, max_depth))
        tb = tb.tb_next
    frames.reverse()
    return tuple(frames)


# ============================================================================
# Rendering
# ============================================================================

def render_arg(arg: Arg) -> str:
    if isinstance(arg, ScalarArg):
        return str(arg.value)
    if isinstance(arg, CompositeArg):
        return "Array"
    if isinstance(arg, HandleArg):
        return "Resource"
    if arg.frames:
        nested = reconstruct(1, arg.frames).rstrip("\n")
        return f"{arg.type_name}\n{nested}"
    return arg.type_name


def render_frame(number: int, frame: Frame) -> str:
    parts = [f"#{number} "]

    if frame.file is None:
        parts.append("[internal function]: ")
    else:
        path = frame.file.replace("\\", "/")
        parts.append(f"{path}({frame.line}): ")

    if frame.type_name:
        parts.append(frame.type_name)
        parts.append(INSTANCE_CALL if frame.call_type == INSTANCE_CALL else STATIC_CALL)

    if frame.function:
        parts.append(frame.function)

    if frame.args is not None:
        parts.append("(" + ",".join(render_arg(a) for a in frame.args) + ")")

    return "".join(parts)


def reconstruct(start: int = 1, frames: Optional[Iterable[Frame]] = None) -> str:
    """
    Convert frames into an exception-like stack trace string.

    Args:
        start: Number of the first frame
        frames: Frames innermost first; the caller's stack when omitted

    Returns:
        One ``#N ...`` line per frame, newline terminated
    """
    if frames is None:
        frames = capture_frames(skip=1)

    return "".join(
        render_frame(number, frame) + "\n"
        for number, frame in enumerate(frames, start)
    )


def reconstruct_exception(exc: BaseException, start: int = 1, max_depth: int = MAX_NESTING) -> str:
    """Reconstruct the trace carried by an exception."""
    return reconstruct(start, frames_from_exception(exc, max_depth=max_depth))

