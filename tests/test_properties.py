"""Property tests for the unused-function analysis over generated call graphs."""

from __future__ import annotations

from hypothesis import given, settings, strategies as st

from noirlint.core.detector import analyze_source
from noirlint.core.models import UnusedDiagnostic

VISIBILITIES = ["", "pub(crate) ", "pub "]

Program = tuple[list[str], set[tuple[int, int]]]


@st.composite
def programs(draw: st.DrawFn) -> Program:
    size = draw(st.integers(min_value=1, max_value=8))
    visibilities = draw(st.lists(st.sampled_from(VISIBILITIES), min_size=size, max_size=size))
    edges = draw(
        st.sets(
            st.tuples(st.integers(0, size - 1), st.integers(0, size - 1)),
            max_size=size * 2,
        )
    )
    return visibilities, edges


def _render(visibilities: list[str], edges: set[tuple[int, int]]) -> str:
    lines = []
    for index, visibility in enumerate(visibilities):
        calls = " ".join(f"f{callee}();" for caller, callee in sorted(edges) if caller == index)
        lines.append(f"{visibility}fn f{index}() {{ {calls} }}")
    return "\n".join(lines) + "\n"


def _closure(starts: set[int], edges: set[tuple[int, int]]) -> set[int]:
    seen: set[int] = set()
    stack = list(starts)
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        stack.extend(callee for caller, callee in edges if caller == node)
    return seen


def _reported(source: str) -> list[int]:
    indices = []
    for diagnostic in analyze_source(source):
        assert isinstance(diagnostic, UnusedDiagnostic)
        indices.append(int(diagnostic.symbol.name[1:]))
    return indices


def _roots(visibilities: list[str]) -> set[int]:
    return {index for index, visibility in enumerate(visibilities) if visibility == "pub "}


@settings(max_examples=75, deadline=None)
@given(programs())
def test_reported_set_is_complement_of_reachable(program: Program) -> None:
    visibilities, edges = program

    reported = _reported(_render(visibilities, edges))

    reachable = _closure(_roots(visibilities), edges)
    assert reported == sorted(set(range(len(visibilities))) - reachable)


@settings(max_examples=75, deadline=None)
@given(programs())
def test_roots_are_never_reported(program: Program) -> None:
    visibilities, edges = program

    reported = set(_reported(_render(visibilities, edges)))

    assert not reported & _roots(visibilities)


@settings(max_examples=50, deadline=None)
@given(programs())
def test_analysis_is_idempotent(program: Program) -> None:
    source = _render(*program)

    first = [d.model_dump() for d in analyze_source(source)]
    second = [d.model_dump() for d in analyze_source(source)]

    assert first == second


@settings(max_examples=75, deadline=None)
@given(programs(), st.data())
def test_adding_root_edge_removes_only_new_reach(program: Program, data: st.DataObject) -> None:
    visibilities, edges = program
    visibilities = ["pub ", *visibilities[1:]]
    target = data.draw(st.integers(0, len(visibilities) - 1))

    before = set(_reported(_render(visibilities, edges)))
    after = set(_reported(_render(visibilities, edges | {(0, target)})))

    assert after == before - _closure({target}, edges)


@settings(max_examples=25, deadline=None)
@given(st.integers(min_value=1, max_value=40))
def test_private_cycles_are_fully_reported(length: int) -> None:
    edges = {(index, (index + 1) % length) for index in range(length)}

    reported = _reported(_render([""] * length, edges))

    assert reported == list(range(length))
