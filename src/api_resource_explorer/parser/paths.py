"""Path-template helpers.

Turns OpenAPI path templates such as ``/users/{id}/posts/{postId}`` into
resource chains, extracts and fills path parameters, and derives the field
that identifies a single resource.
"""

import re
from urllib.parse import quote

_PARAM_RE = re.compile(r"^(\{([^}/]+)\}|:([^/]+))$")

IDENTIFIER_SUFFIXES = ("Name", "Code", "Key", "Identifier")
COMMON_IDENTIFIERS = ("uuid", "guid", "key", "identifier", "code", "name")
FIELD_ALIASES = {
    "id": "id",
    "identifier": "id",
    "key": "id",
    "uuid": "id",
    "guid": "id",
    "name": "name",
    "title": "name",
    "code": "code",
    "number": "number",
    "num": "number",
}


def split_segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def param_name(segment: str) -> str | None:
    """Return the parameter name of a `{name}` / `:name` segment, else None."""
    m = _PARAM_RE.match(segment)
    if not m:
        return None
    return m.group(2) or m.group(3)


def is_param_segment(segment: str) -> bool:
    return param_name(segment) is not None


def is_item_path(path: str) -> bool:
    """True if the template ends with a path parameter (`/users/{id}`)."""
    segments = split_segments(path)
    return bool(segments) and is_param_segment(segments[-1])


def resource_chain(path: str, action_segments=()) -> list[str]:
    """Resource names of a path template, outermost first.

    "/users/{id}/posts/{postId}/comments" -> ["users", "posts", "comments"]
    """
    ignored = {s.lower() for s in action_segments}
    return [
        s for s in split_segments(path)
        if not is_param_segment(s) and s.lower() not in ignored
    ]


def extract_param_names(path_pattern: str) -> list[str]:
    """Parameter names in template order: "/a/{x}/b/{y}" -> ["x", "y"]."""
    names = []
    for segment in split_segments(path_pattern):
        name = param_name(segment)
        if name:
            names.append(name)
    return names


def build_path(path_pattern: str, path_params: dict) -> str:
    """Fill a template with URL-encoded parameter values.

    Parameters without a value are left as placeholders.
    """
    segments = []
    for segment in path_pattern.split("/"):
        name = param_name(segment) if segment else None
        if name is not None and name in path_params:
            segments.append(quote(str(path_params[name]), safe=""))
        else:
            segments.append(segment)
    return "/".join(segments)


def match_path(path_pattern: str, concrete_path: str) -> dict[str, str] | None:
    """Extract parameter values from a concrete path.

    Returns None if the static segments or the segment count differ.
    """
    pattern_segments = split_segments(path_pattern)
    concrete_segments = split_segments(concrete_path)
    if len(pattern_segments) != len(concrete_segments):
        return None

    params = {}
    for pattern_segment, segment in zip(pattern_segments, concrete_segments):
        name = param_name(pattern_segment)
        if name is not None:
            params[name] = segment
        elif pattern_segment != segment:
            return None
    return params


def select_main_path(paths: list[str]) -> str:
    """Pick the representative template of a cluster.

    Fewer resource segments first, then templates without parameters, then
    lexicographic order.
    """
    def sort_key(p: str):
        static = [s for s in split_segments(p) if not is_param_segment(s)]
        has_params = any(is_param_segment(s) for s in split_segments(p))
        return (len(static), has_params, p)

    return sorted(paths, key=sort_key)[0]


def singularize(name: str) -> str:
    """Naive English singular: categories -> category, boxes -> box, users -> user."""
    name = name.lower()
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith("es"):
        return name[:-2]
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


def select_identifier(resource_name: str, candidates: list[str]) -> str:
    """Choose the parameter most likely to identify a resource.

    Priority: `id`, `<singular>Id`, `<singular>Name|Code|Key|Identifier`,
    anything containing the resource name, common identifier words, first.
    """
    if not candidates:
        return "id"
    if "id" in candidates:
        return "id"

    singular = singularize(resource_name)
    id_re = re.compile(rf"^{re.escape(singular)}id$", re.IGNORECASE)
    for c in candidates:
        if id_re.match(c):
            return c

    suffix_re = re.compile(rf"^{re.escape(singular)}({'|'.join(IDENTIFIER_SUFFIXES)})$", re.IGNORECASE)
    for c in candidates:
        if suffix_re.match(c):
            return c

    for c in candidates:
        if singular and singular in c.lower():
            return c

    for c in candidates:
        if any(common in c.lower() for common in COMMON_IDENTIFIERS):
            return c

    return candidates[0]


def normalize_identifier(resource_name: str, identifier: str) -> str:
    """Map a path parameter to the field it names: bookName -> name, userId -> id."""
    singular = singularize(resource_name)
    lowered = identifier.lower()
    if lowered == "id":
        return "id"

    if singular and lowered.startswith(singular) and len(identifier) > len(singular):
        rest = identifier[len(singular):]
        return FIELD_ALIASES.get(rest.lower(), rest)

    if singular and lowered.endswith(singular) and len(identifier) > len(singular):
        rest = identifier[: len(identifier) - len(singular)]
        return FIELD_ALIASES.get(rest.lower(), rest) or identifier

    return identifier


def resource_identifier(resource_name: str, item_paths: list[str]) -> str:
    """Identifier field of a resource, from the trailing parameter of its item routes."""
    candidates = []
    for path in item_paths:
        names = extract_param_names(path)
        if names and names[-1] not in candidates:
            candidates.append(names[-1])
    if not candidates:
        return "id"
    return normalize_identifier(resource_name, select_identifier(resource_name, candidates))
