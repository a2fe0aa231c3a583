import pytest

from layertree.link_strategy import LinkResolutionStrategy
from layertree.nodes import (
    FileNode,
    FileType,
    Reference,
    Resolution,
    constituent_paths,
)
from layertree.resolver import (
    MAX_LINK_RESOLUTION_DEPTH,
    LinkCycleError,
    LinkResolutionDepthError,
    LinkResolver,
)
from layertree.store import Tree

FOLLOW_ALL = LinkResolutionStrategy(follow_ancestor_links=True, follow_basename_links=True)
FOLLOW_NOT_DEAD = LinkResolutionStrategy(
    follow_ancestor_links=True,
    follow_basename_links=True,
    do_not_follow_dead_basename_links=True,
)
ANCESTORS_ONLY = LinkResolutionStrategy(follow_ancestor_links=True)


def _new_tree() -> Tree:
    tree = Tree()
    tree.add_root(FileNode("/", FileType.DIRECTORY))
    return tree


def _add(tree: Tree, path: str, file_type: FileType, link: str = "") -> Reference:
    parent = tree.node("/")
    for ancestor in constituent_paths(path):
        existing = tree.node(ancestor)
        if existing is None:
            existing = FileNode(ancestor, FileType.DIRECTORY)
            tree.add_child(parent, existing)
        parent = existing
    ref = Reference(path)
    node = FileNode(path, file_type, link, ref)
    existing = tree.node(path)
    if existing is not None:
        tree.replace(existing, node)
    else:
        tree.add_child(parent, node)
    return ref


def _file(tree, path):
    return _add(tree, path, FileType.REGULAR)


def _link(tree, path, dest):
    return _add(tree, path, FileType.SYM_LINK, dest)


def test_node_without_links_finds_existing_path():
    tree = _new_tree()
    ref = _file(tree, "/home/file.txt")
    access = LinkResolver(tree).node("/home/file.txt")
    assert access.has_file_node()
    assert access.file_node.reference == ref
    assert access.request_path == "/home/file.txt"


def test_node_missing_path_has_normalized_request():
    tree = _new_tree()
    access = LinkResolver(tree).node("/nowhere/")
    assert not access.has_file_node()
    assert access.request_path == "/nowhere"


def test_node_without_links_returns_symlink_itself():
    tree = _new_tree()
    link_ref = _link(tree, "/home", "/another/place")
    _file(tree, "/another/place")
    access = LinkResolver(tree).node("/home")
    assert access.file_node.reference == link_ref
    assert access.file_resolution() == Resolution("/home", link_ref, [])


def test_ancestor_absolute_symlink():
    tree = _new_tree()
    _link(tree, "/home", "/another/place")
    real = _file(tree, "/another/place/wagoodman")
    access = LinkResolver(tree).node("/home/wagoodman", ANCESTORS_ONLY)
    assert access.request_path == "/home/wagoodman"
    assert access.file_node.reference == real
    assert access.file_resolution().link_resolutions == []


def test_ancestor_relative_symlink_above_root():
    tree = _new_tree()
    _link(tree, "/home", "../../../../../../../../../../../../another/place")
    real = _file(tree, "/another/place/wagoodman")
    access = LinkResolver(tree).node("/home/wagoodman", FOLLOW_ALL)
    assert access.file_node.reference == real


def test_basename_symlink_is_followed():
    tree = _new_tree()
    home = _link(tree, "/home", "/another/place")
    real = _file(tree, "/another/place")
    resolution = LinkResolver(tree).node("/home", FOLLOW_ALL).file_resolution()
    assert resolution == Resolution("/home", real, [Resolution("/home", home)])


def test_multiple_indirections():
    tree = _new_tree()
    _link(tree, "/home", "/another/place")
    _link(tree, "/another/place", "/someother/place")
    real = _file(tree, "/someother/place/wagoodman")
    access = LinkResolver(tree).node("/home/wagoodman", FOLLOW_ALL)
    assert access.file_node.real_path == "/someother/place/wagoodman"
    assert access.file_node.reference == real


def test_dead_basename_link_followed_yields_no_node():
    tree = _new_tree()
    _link(tree, "/home", "/mwahaha/i/go/to/nowhere")
    access = LinkResolver(tree).node("/home", FOLLOW_ALL)
    assert not access.has_file_node()
    assert access.file_resolution() is None


def test_dead_basename_link_not_followed_returns_link():
    tree = _new_tree()
    home = _link(tree, "/home", "/mwahaha/i/go/to/nowhere")
    resolution = LinkResolver(tree).node("/home", FOLLOW_NOT_DEAD).file_resolution()
    assert resolution == Resolution(
        "/home",
        home,
        [Resolution("/home", home), Resolution("/mwahaha/i/go/to/nowhere", None)],
    )


def test_cycle_detection():
    tree = _new_tree()
    _link(tree, "/home", "/another/place")
    _link(tree, "/another/place", "/home")
    with pytest.raises(LinkCycleError):
        LinkResolver(tree).node("/home/wagoodman", FOLLOW_ALL)


def test_dead_cycle_detection():
    tree = _new_tree()
    _link(tree, "/somewhere/acorn", "noobaa-core/../acorn/bin/acorn")
    with pytest.raises(LinkCycleError):
        LinkResolver(tree).node("/somewhere/acorn", FOLLOW_ALL)


def test_short_circuit_dead_basename_link_cycles():
    tree = _new_tree()
    _file(tree, "/usr/bin/ksh93")
    link_ref = _link(tree, "/usr/local/bin/ksh", "/bin/ksh")
    _link(tree, "/bin", "/usr/bin/ksh93")
    resolver = LinkResolver(tree)
    assert not resolver.node("/usr/local/bin/ksh", FOLLOW_ALL).has_file_node()
    access = resolver.node("/usr/local/bin/ksh", FOLLOW_NOT_DEAD)
    assert access.file_node.reference == link_ref


def test_multiple_ancestor_resolutions_for_same_node():
    tree = _new_tree()
    actual = _file(tree, "/usr/bin/ksh93")
    _link(tree, "/usr/local/bin/ksh", "/bin/ksh")
    _link(tree, "/bin", "/usr/bin")
    _link(tree, "/etc/alternatives/ksh", "/bin/ksh93")
    _link(tree, "/usr/bin/ksh", "/etc/alternatives/ksh")
    resolver = LinkResolver(tree)
    first = resolver.node("/usr/local/bin/ksh", FOLLOW_ALL)
    second = resolver.node("/usr/local/bin/ksh", FOLLOW_ALL)
    assert first.file_node.reference == actual
    assert second.file_node.reference == actual


def test_max_link_depth():
    tree = _new_tree()
    _file(tree, "/usr/bin/ksh93")
    _link(tree, "/usr/local/bin/ksh", "/bin/ksh")
    _link(tree, "/bin", "/usr/bin")
    _link(tree, "/etc/alternatives/ksh", "/bin/ksh93")
    _link(tree, "/usr/bin/ksh", "/etc/alternatives/ksh")
    resolver = LinkResolver(tree)
    current = resolver.node("/usr/local/bin/ksh")
    with pytest.raises(LinkResolutionDepthError):
        resolver.resolve_node_links(current, True, None, 2)


def test_maximum_link_resolution_exceeded():
    tree = _new_tree()
    ref = _file(tree, "/usr/bin/ksh")
    for i in range(MAX_LINK_RESOLUTION_DEPTH):
        _link(tree, f"/usr/bin/ksh{i}", f"/usr/bin/ksh{i + 1}")
    _link(tree, "/usr/bin/ksh100", "/usr/bin/ksh")
    resolver = LinkResolver(tree)
    with pytest.raises(LinkResolutionDepthError):
        resolver.node("/usr/bin/ksh0", FOLLOW_ALL)
    access = resolver.node("/usr/bin/ksh90", FOLLOW_ALL)
    assert access.file_node.reference == ref


def test_resolve_node_links_requires_node():
    tree = _new_tree()
    with pytest.raises(ValueError):
        LinkResolver(tree).resolve_node_links(None, True)


def test_resolve_node_links_on_regular_file_returns_it():
    tree = _new_tree()
    ref = _file(tree, "/etc/passwd-like")
    resolver = LinkResolver(tree)
    access = resolver.node("/etc/passwd-like")
    result = resolver.resolve_node_links(access, True)
    assert result is access
    assert result.references() == [ref, ref]
    assert result.file_resolution().link_resolutions == []


def test_resolve_ancestor_links_stops_at_unknown_path():
    tree = _new_tree()
    _file(tree, "/a/b")
    result = LinkResolver(tree).resolve_ancestor_links("/a/x/y", None, MAX_LINK_RESOLUTION_DEPTH)
    assert not result.has_file_node()
    assert result.request_path == "/a/x"


def test_relative_link_in_same_directory():
    tree = _new_tree()
    real = _file(tree, "/home/thing.txt")
    _link(tree, "/home/thing", "./thing.txt")
    access = LinkResolver(tree).node("/home/thing", FOLLOW_ALL)
    assert access.file_node.reference == real
    assert access.request_path == "/home/thing"