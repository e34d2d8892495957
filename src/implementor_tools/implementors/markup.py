"""
Display markup for implementor records.

Produces the HTML fragment shown in an Implementors list, e.g.

    impl <a class="trait" href="https://doc.rust-lang.org/nightly/core/marker/trait.Sync.html"
    title="trait core::marker::Sync">Sync</a> for <a class="enum"
    href="byteorder/enum.BigEndian.html" title="enum byteorder::BigEndian">BigEndian</a>

Items of units documented in this build link relative to the doc root;
items of other crates link to their external documentation root.
"""

from dataclasses import dataclass, field
from html import escape

from implementor_tools.shared import PRIMITIVE_TYPES

from .declarations import Contract, TypeRef


@dataclass
class MarkupContext:
    """What the renderer needs to know to build links."""
    extern_urls: dict[str, str] = field(default_factory=dict)
    kinds: dict[str, str] = field(default_factory=dict)  # type path -> item kind
    local_units: set[str] = field(default_factory=set)


def item_href(path: str, kind: str, ctx: MarkupContext) -> str | None:
    """
    Documentation URL of an item, or None for unqualified names.

    a::b::C (struct) -> a/b/struct.C.html, prefixed with the crate's
    external root unless the crate is documented locally.
    """
    segments = path.split("::")
    if len(segments) < 2:
        return None
    relative = "/".join(segments[:-1]) + f"/{kind}.{segments[-1]}.html"
    crate = segments[0]
    if crate not in ctx.local_units and crate in ctx.extern_urls:
        return ctx.extern_urls[crate].rstrip("/") + "/" + relative
    return relative


def _link(path: str, kind: str, ctx: MarkupContext) -> str:
    name = path.rsplit("::", 1)[-1]
    href = item_href(path, kind, ctx)
    if href is None:
        return escape(name)
    return (
        f'<a class="{kind}" href="{escape(href)}" '
        f'title="{escape(f"{kind} {path}")}">{escape(name)}</a>'
    )


def contract_link(contract: Contract, ctx: MarkupContext) -> str:
    return _link(contract.path, "trait", ctx)


def type_link(ref: TypeRef, ctx: MarkupContext) -> str:
    """Markup for a type reference, generic arguments included."""
    if ref.is_generic:
        return escape(ref.generic)
    if ref.path in PRIMITIVE_TYPES:
        text = escape(ref.path)
    else:
        text = _link(ref.path, ctx.kinds.get(ref.path, "struct"), ctx)
    if ref.args:
        text += "&lt;" + ", ".join(type_link(a, ctx) for a in ref.args) + "&gt;"
    return text


def render_impl_text(
    contract: Contract,
    for_type: TypeRef,
    ctx: MarkupContext,
    generics: tuple[str, ...] = (),
    where: tuple[str, ...] = (),
    negative: bool = False,
) -> str:
    """Render the full `impl ... for ...` line for one record."""
    text = "impl"
    if generics:
        text += "&lt;" + ", ".join(escape(g) for g in generics) + "&gt;"
    text += " "
    if negative:
        text += "!"
    trait = contract_link(contract, ctx)
    text += f"{trait} for {type_link(for_type, ctx)}"
    if where:
        text += " where " + ", ".join(f"{escape(param)}: {trait}" for param in where)
    return text
