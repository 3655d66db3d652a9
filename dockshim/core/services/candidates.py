"""
Candidate tables — which argument vectors to try, in which order.

Two kinds of table live here, both as plain data:

* Static candidate lists for the engine's own operations (list
  containers, delete image, builder status, ...). JSON output flags are
  tried first, text output last.
* The Docker-dialect translation table: a Docker-style head verb maps to
  native spellings in preference order. The remaining arguments are
  appended to every spelling, and the untouched Docker command is always
  the last resort in case the backend understands it verbatim.

Ordering policy: native spelling first, Docker spelling last.

Nothing here runs a process; see ``dispatcher`` for that.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

Candidate = list[str]
Spellings = tuple[tuple[str, ...], ...]


def dedupe(candidates: Iterable[Sequence[str]]) -> list[Candidate]:
    """Drop repeated argument vectors, keeping the first occurrence."""
    seen: set[tuple[str, ...]] = set()
    result: list[Candidate] = []
    for candidate in candidates:
        key = tuple(candidate)
        if key in seen:
            continue
        seen.add(key)
        result.append(list(candidate))
    return result


# ═══════════════════════════════════════════════════════════════════
#  Static candidates for engine operations
# ═══════════════════════════════════════════════════════════════════


SYSTEM_START: list[Candidate] = [["system", "start"]]
SYSTEM_STOP: list[Candidate] = [["system", "stop"]]
SYSTEM_STATUS: list[Candidate] = [
    ["system", "status", "--format", "json"],
    ["system", "status", "--json"],
    ["system", "status"],
]

LIST_IMAGES: list[Candidate] = [
    ["image", "list", "--format", "json"],
    ["image", "ls", "--format", "json"],
    ["image", "list"],
    ["image", "ls"],
]

BUILDER_STATUS: list[Candidate] = [
    ["builder", "status", "--json"],
    ["builder", "status", "--format", "json"],
    ["builder", "status"],
]
BUILDER_STOP: list[Candidate] = [["builder", "stop"]]


def system_logs(follow: bool = True) -> Candidate:
    args = ["system", "logs"]
    if follow:
        args.append("--follow")
    return args


def list_containers(all_: bool = True) -> list[Candidate]:
    if all_:
        return [
            ["list", "--all", "--format", "json"],
            ["list", "-a", "--format", "json"],
            ["ls", "--all", "--format", "json"],
            ["ls", "-a", "--format", "json"],
            ["list", "--all"],
            ["list", "-a"],
            ["ls", "-a"],
        ]
    return [
        ["list", "--format", "json"],
        ["ls", "--format", "json"],
        ["list"],
        ["ls"],
    ]


def container_action(verb: str, container_id: str) -> list[Candidate]:
    """start / stop / kill take the id and nothing else."""
    return [[verb, container_id]]


def delete_container(container_id: str, force: bool = False) -> list[Candidate]:
    flags = ["--force"] if force else []
    return [
        ["delete", *flags, container_id],
        ["rm", *flags, container_id],
    ]


def inspect_container(container_id: str) -> list[Candidate]:
    return [
        ["inspect", container_id, "--format", "json"],
        ["inspect", container_id],
    ]


def container_logs(container_id: str, follow: bool = True, boot: bool = False) -> Candidate:
    args = ["logs"]
    if follow:
        args.append("--follow")
    if boot:
        args.append("--boot")
    args.append(container_id)
    return args


def pull_image(reference: str) -> list[Candidate]:
    return [["image", "pull", reference]]


def delete_image(reference: str, force: bool = False) -> list[Candidate]:
    flags = ["--force"] if force else []
    return [
        ["image", "delete", *flags, reference],
        ["image", "rm", *flags, reference],
    ]


def inspect_image(reference: str) -> list[Candidate]:
    return [
        ["image", "inspect", reference, "--format", "json"],
        ["image", "inspect", reference],
    ]


def builder_start(cpus: int | None = None, memory: str | None = None) -> list[Candidate]:
    args = ["builder", "start"]
    if cpus is not None:
        args += ["--cpus", str(cpus)]
    if memory:
        args += ["--memory", memory]
    return [args]


# ═══════════════════════════════════════════════════════════════════
#  Docker dialect → native dialect
# ═══════════════════════════════════════════════════════════════════


# Top-level Docker verbs. Each entry lists native spellings; the
# remaining arguments are appended to every one of them.
TOP_LEVEL: dict[str, Spellings] = {
    "ps": (("list",), ("ls",), ("ps",)),
    "images": (("image", "list"), ("image", "ls"), ("images",)),
    "rm": (("delete",), ("rm",)),
    "rmi": (("image", "delete"), ("image", "rm"), ("rmi",)),
    "info": (("system", "status"), ("info",)),
    "compose": (("compose",), ("system", "compose")),
    "pull": (("image", "pull"), ("pull",)),
    "push": (("image", "push"), ("push",)),
    "tag": (("image", "tag"), ("tag",)),
    "save": (("image", "save"), ("save",)),
    "load": (("image", "load"), ("load",)),
    "login": (("registry", "login"), ("login",)),
    "logout": (("registry", "logout"), ("logout",)),
}

_CONTAINER_LIST: Spellings = (("list",), ("ls",), ("container", "ls"))
_CONTAINER_DELETE: Spellings = (("delete",), ("container", "rm"), ("rm",))

# ``docker container <sub>``
CONTAINER_SUB: dict[str, Spellings] = {
    "ls": _CONTAINER_LIST,
    "list": _CONTAINER_LIST,
    "ps": _CONTAINER_LIST,
    "rm": _CONTAINER_DELETE,
    "delete": _CONTAINER_DELETE,
    "remove": _CONTAINER_DELETE,
}

# Sub-verbs the native CLI accepts at top level as well as under "container".
CONTAINER_PASSTHROUGH = frozenset({
    "inspect", "start", "stop", "kill", "logs", "exec", "cp",
    "diff", "restart", "wait", "create", "run", "prune",
})

_IMAGE_LIST: Spellings = (("image", "list"), ("image", "ls"))
_IMAGE_DELETE: Spellings = (("image", "delete"), ("image", "rm"))

# ``docker image <sub>``
IMAGE_SUB: dict[str, Spellings] = {
    "ls": _IMAGE_LIST,
    "list": _IMAGE_LIST,
    "rm": _IMAGE_DELETE,
    "delete": _IMAGE_DELETE,
    "remove": _IMAGE_DELETE,
}

# ``docker system <sub>``: lifecycle verbs pass through, everything
# else falls back to a plain status/info query.
SYSTEM_PASSTHROUGH = frozenset({"start", "stop", "status", "logs"})
SYSTEM_INFO_FALLBACK: Spellings = (("system", "status"), ("info",))

# ``docker buildx <sub>`` / ``docker builder <sub>``
BUILDER_SUB: dict[str, Spellings] = {
    "ls": (("builder", "status"), ("builder", "ls"), ("buildx", "ls")),
    "list": (("builder", "status"), ("builder", "ls"), ("buildx", "ls")),
    "stop": (("builder", "stop"), ("buildx", "stop")),
    "start": (("builder", "start"), ("buildx", "inspect", "--bootstrap")),
    "build": (("build",), ("buildx", "build")),
}
BUILDER_HEADS = frozenset({"buildx", "builder"})


def _native_spellings(head: str, rest: list[str]) -> list[Candidate]:
    """Native candidates for a Docker command, without the literal fallback."""
    if head in TOP_LEVEL:
        return [[*spelling, *rest] for spelling in TOP_LEVEL[head]]

    if not rest:
        return []

    sub, tail = rest[0].lower(), rest[1:]

    if head == "container":
        if sub in CONTAINER_SUB:
            return [[*spelling, *tail] for spelling in CONTAINER_SUB[sub]]
        if sub in CONTAINER_PASSTHROUGH:
            return [[sub, *tail], ["container", sub, *tail]]
        return []

    if head == "image":
        if sub in IMAGE_SUB:
            return [[*spelling, *tail] for spelling in IMAGE_SUB[sub]]
        return [["image", sub, *tail]]

    if head == "system":
        if sub in SYSTEM_PASSTHROUGH:
            return [["system", sub, *tail]]
        return [list(spelling) for spelling in SYSTEM_INFO_FALLBACK]

    if head in BUILDER_HEADS:
        if sub in BUILDER_SUB:
            return [[*spelling, *tail] for spelling in BUILDER_SUB[sub]]
        return [["builder", sub, *tail]]

    return []


def docker_compatible_candidates(arguments: Sequence[str]) -> list[Candidate]:
    """Ordered native candidates for a Docker-style argument vector.

    The original vector is always the last entry; duplicates collapse to
    their first occurrence. An empty vector yields an empty list.
    """
    if not arguments:
        return []
    head, rest = arguments[0].lower(), list(arguments[1:])
    return dedupe([*_native_spellings(head, rest), list(arguments)])
