"""
Trace reconstruction (faultline/trace.py)

Tests frame capture, argument classification and rendering.
"""

import io

import pytest

from faultline.trace import (
    MAX_NESTING,
    CompositeArg,
    Frame,
    HandleArg,
    ObjectArg,
    ScalarArg,
    capture_frames,
    classify_arg,
    frames_from_exception,
    reconstruct,
    reconstruct_exception,
    render_frame,
)


def failing(value):
    raise ValueError(f"bad {value}")


def catch(fn, *args):
    try:
        fn(*args)
    except Exception as e:
        return e


def nesting(frames):
    """Deepest level of exception frames expanded beneath arguments."""
    deepest = 0
    for frame in frames:
        for arg in frame.args or ():
            if isinstance(arg, ObjectArg) and arg.frames:
                deepest = max(deepest, 1 + nesting(arg.frames))
    return deepest


class Widget:

    def method(self, a):
        return capture_frames()

    @classmethod
    def build(cls, a):
        return capture_frames()


# ============================================================================
# Rendering synthetic frames
# ============================================================================

class TestRenderSynthetic:

    def test_three_frames_with_internal(self):
        frames = [
            Frame(function="inner", file="/app/a.py", line=3, args=()),
            Frame(function="call_user_func", args=()),
            Frame(function="main", file="/app/b.py", line=9, args=()),
        ]
        lines = reconstruct(5, frames).splitlines()
        assert lines == [
            "#5 /app/a.py(3): inner()",
            "#6 [internal function]: call_user_func()",
            "#7 /app/b.py(9): main()",
        ]

    def test_numbers_increase_from_offset(self):
        frames = [Frame(function=f"f{i}", file="x.py", line=i) for i in range(4)]
        numbers = [int(l.split()[0][1:]) for l in reconstruct(1, frames).splitlines()]
        assert numbers == [1, 2, 3, 4]

    def test_newline_terminated(self):
        assert reconstruct(1, [Frame(function="f")]).endswith("\n")

    def test_empty_frames(self):
        assert reconstruct(1, []) == ""

    def test_backslashes_normalized(self):
        line = render_frame(1, Frame(function="f", file="C:\\www\\index.py", line=2))
        assert line == "#1 C:/www/index.py(2): f"

    def test_instance_call(self):
        frame = Frame(function="save", file="m.py", line=1, type_name="Model", call_type="->", args=())
        assert render_frame(1, frame) == "#1 m.py(1): Model->save()"

    def test_static_call(self):
        frame = Frame(function="create", file="m.py", line=1, type_name="Model", call_type="::", args=())
        assert render_frame(1, frame) == "#1 m.py(1): Model::create()"

    def test_no_args_no_parens(self):
        assert render_frame(1, Frame(function="f", file="m.py", line=1)) == "#1 m.py(1): f"

    def test_argument_rendering(self):
        frame = Frame(
            function="f",
            file="m.py",
            line=1,
            args=(ScalarArg("disk"), ScalarArg(3), CompositeArg(), HandleArg(), ObjectArg("Config")),
        )
        assert render_frame(1, frame) == "#1 m.py(1): f(disk,3,Array,Resource,Config)"

    def test_falsy_scalars_rendered(self):
        frame = Frame(function="f", args=(ScalarArg(0), ScalarArg(""), ScalarArg(False), ScalarArg(None)))
        assert render_frame(1, frame) == "#1 [internal function]: f(0,,False,None)"

    def test_nested_fault_frames(self):
        nested = (Frame(function="connect", file="db.py", line=7, args=()),)
        frame = Frame(function="handle", file="app.py", line=2, args=(ObjectArg("OSError", nested),))
        text = reconstruct(1, [frame])
        assert text == "#1 app.py(2): handle(OSError\n#1 db.py(7): connect())\n"


# ============================================================================
# Argument classification
# ============================================================================

class TestClassifyArg:

    @pytest.mark.parametrize("value", ["s", b"b", 1, 1.5, True, None, 0])
    def test_scalars(self, value):
        assert classify_arg(value) == ScalarArg(value)

    @pytest.mark.parametrize("value", [[1], (1,), {"a": 1}, {1}, frozenset()])
    def test_composites(self, value):
        assert isinstance(classify_arg(value), CompositeArg)

    def test_handle(self):
        assert isinstance(classify_arg(io.StringIO()), HandleArg)

    def test_plain_object(self):
        arg = classify_arg(Widget())
        assert arg == ObjectArg(f"{__name__}.Widget")

    def test_exception_carries_frames(self):
        exc = catch(failing, 1)
        arg = classify_arg(exc)
        assert arg.type_name == "ValueError"
        assert arg.frames
        assert arg.frames[0].function == "failing"

    def test_exception_beyond_depth_not_expanded(self):
        exc = catch(failing, 1)
        arg = classify_arg(exc, depth=3, max_depth=3)
        assert arg == ObjectArg("ValueError")


# ============================================================================
# Capture
# ============================================================================

class TestCapture:

    def test_innermost_first(self):
        frames = capture_frames()
        assert frames[0].function == "test_innermost_first"

    def test_skip(self):
        def helper():
            return capture_frames(skip=1)

        assert helper()[0].function == "test_skip"

    def test_instance_method(self):
        frame = Widget().method("x")[0]
        assert frame.function == "method"
        assert frame.call_type == "->"
        assert frame.type_name.endswith("Widget")
        assert frame.args == (ScalarArg("x"),)

    def test_class_method(self):
        frame = Widget.build(2)[0]
        assert frame.call_type == "::"
        assert frame.args == (ScalarArg(2),)

    def test_internal_file(self):
        namespace = {"capture_frames": capture_frames}
        exec("def f():\n    return capture_frames()\n", namespace)
        frame = namespace["f"]()[0]
        assert frame.file is None
        assert render_frame(1, frame).startswith("#1 [internal function]: f(")

    def test_reconstruct_drops_own_frame(self):
        text = reconstruct()
        first = text.splitlines()[0]
        assert "test_reconstruct_drops_own_frame" in first
        assert "reconstruct(" not in first


# ============================================================================
# Exceptions
# ============================================================================

class TestExceptionFrames:

    def test_innermost_first(self):
        exc = catch(failing, 5)
        frames = frames_from_exception(exc)
        assert [f.function for f in frames] == ["failing", "catch"]
        assert frames[0].args == (ScalarArg(5),)

    def test_never_raised(self):
        assert frames_from_exception(ValueError("x")) == ()

    def test_reconstruct_exception(self):
        text = reconstruct_exception(catch(failing, 5))
        assert text.startswith("#1 ")
        assert "failing(5)" in text

    def test_nested_exception_argument(self):
        inner = catch(failing, 1)

        def wrap(error):
            raise RuntimeError("wrapped")

        outer = catch(wrap, inner)
        text = reconstruct_exception(outer)
        assert "wrap(ValueError\n#1 " in text
        assert "failing(1)" in text

    def test_self_referential_terminates(self):
        def reraise(error):
            raise error

        exc = catch(failing, 1)
        exc = catch(reraise, exc)
        # reraise's own argument is the exception being rendered
        text = reconstruct_exception(exc)
        assert text.count("reraise(ValueError") >= 1
        assert nesting(frames_from_exception(exc)) == MAX_NESTING
        assert nesting(frames_from_exception(exc, max_depth=2)) == 2
