# layertree

An in-memory model of a filesystem tree, made to describe what a container
image layer holds. You add paths as regular files, directories, symlinks or
hardlinks. You can then look the tree up with or without link resolution,
search it with glob patterns, and merge an upper layer into it. Merging
honours whiteout (`.wh.`) entries and opaque directory markers
(`.wh..wh..opq`).

The package uses only the standard library.

## Modules

- `layertree.filetree`: `FileTree`, the main entry point. It adds, looks up,
  globs, removes, compares and merges paths.
- `layertree.nodes`: `FileType`, `Reference`, `Resolution`, `FileNode` and
  `NodeAccess`, plus path helpers. These are `normalize_path`,
  `parent_path`, `constituent_paths`, `all_paths`, `basename`,
  `is_whiteout`, `is_dir_whiteout` and `unwhiteout_path`.
- `layertree.link_strategy`: `LinkResolutionOption` and
  `LinkResolutionStrategy`.
- `layertree.resolver`: `LinkResolver`, `LinkCycleError` and
  `LinkResolutionDepthError`.
- `layertree.glob`: `GlobFS`, `DirHandle`, `FileInfo` and the `glob`
  function.
- `layertree.glob_parser`: `parse_glob` and the helpers it uses to break a
  pattern into `SearchRequest`s.
- `layertree.index`: `Index`, `IndexEntry`, `Metadata` and
  `file_extensions`.
- `layertree.store`: `Tree`, the generic ordered tree that lies under a
  `FileTree`.

## Building a tree

```python
from layertree.filetree import FileTree
from layertree.link_strategy import LinkResolutionOption

tree = FileTree()
tree.add_dir("/parent")
ref = tree.add_file("/parent/file.txt")
tree.add_sym_link("/parent-link", "/parent")

exists, resolution = tree.file(
    "/parent-link/file.txt", LinkResolutionOption.FOLLOW_BASENAME_LINKS
)
assert exists and resolution.reference == ref
```

Each `add_*` call returns a `Reference`. A reference carries the real path
and a fresh, unique `id`. If you add the same path again with the same
type, you get the existing reference back. If you add it with a different
type, `FileExistsError` is raised.

Missing ancestors of an added path are created as directories with no
reference. Only paths you add yourself get one. The paths you add must be
real paths, with no links among their ancestors.

## Link resolution

`FileTree.file(path, *options)` returns `(exists, resolution)`.
`resolution` is `None` when the path does not exist. Ancestor links are
always resolved.

The options change how the basename is handled:

- `LinkResolutionOption.FOLLOW_BASENAME_LINKS` follows a link at the
  basename as well.
- `LinkResolutionOption.DO_NOT_FOLLOW_DEAD_BASENAME_LINKS` applies when a
  chain ends at a missing path. Instead of nothing, you get back the last
  link that does exist.

`Resolution.link_resolutions` lists the links followed at the basename,
each as a `Resolution` of its own.

Resolution raises `layertree.resolver.LinkCycleError` when links form a
cycle. It raises `layertree.resolver.LinkResolutionDepthError` when a chain
runs past the depth limit of 100 (`MAX_LINK_RESOLUTION_DEPTH`).
`FileTree.has_path` treats both errors as "does not exist".

## Globbing

```python
for resolution in tree.files_by_glob("**/*.txt"):
    print(resolution.request_path, resolution.real_path)
```

Patterns are always taken from `/`. The syntax is:

- `*` and `?` for characters within one path element,
- `[...]` for character classes,
- `{a,b}` for alternatives,
- `**` for any number of directories.

Links to directories are descended into. Each match is reported under the
path that was matched, not under its real path. Directories are never
returned. Results are sorted by request path.

An empty query raises `ValueError`, and so does a malformed pattern.

`layertree.glob.GlobFS` offers `stat`, `lstat`, `read_dir` and `open` over
a tree's resolver, for example `GlobFS(tree.resolver)`. A directory that
doubles back on itself through a link is listed on the first pass. On
later passes it is listed as empty.

`layertree.glob_parser.parse_glob` breaks a pattern into cheaper searches.
Each search works by full path, extension, basename, basename glob or
subdirectory, and may carry a full-glob requirement. It only classifies
the pattern; it does not run the searches.

## Removing and merging

- `remove_path(path)` removes a path and everything below it. A link at
  the basename is itself removed, not what it points to. Passing `/`
  raises `RemovingRootError`.
- `remove_child_paths(path)` removes only what lies below the path.

```python
lower = FileTree()
lower.add_file("/etc/config")

upper = FileTree()
upper.add_file("/etc/.wh.config")

lower.merge(upper)
assert not lower.has_path("/etc/config")
```

When entries conflict, the upper tree wins. An upper entry that has no
reference keeps the lower one, provided both are of the same type. A
whiteout removes the matching lower path. An opaque marker clears the
children of the lower directory. When a non-directory replaces a
directory, the directory's children are dropped.

`path_diff(other)` returns the paths found only in `other` and those found
only in this tree. `equal(other)`, or `==`, compares the two sets of paths.
`copy()` returns an independent tree.

## Metadata index

```python
from layertree.index import Index, Metadata
from layertree.nodes import FileType

index = Index()
index.add(ref, Metadata(path="/parent/file.txt", type=FileType.REGULAR, mime_type="text/plain"))
index.get_by_extension(".txt")
index.get_by_basename_glob("file*")
```

`Index` catalogues references by file type, MIME type, extension (every
suffix, such as `.gz` and `.tar.gz`) and basename. Lookups return entries
grouped by the keys you asked for, in reference-id order within each key.
`get` raises `FileNotFoundError` for a reference that is not indexed.

Basename lookups raise `ValueError` when a name contains `/`. Basename
globs also raise `ValueError` when they contain `**`. The index is safe to
use from several threads.

## What it does not do

The package only models paths. It does not:

- read image archives or layer tarballs,
- store or return file contents,
- detect MIME types (whatever `Metadata` you pass in is kept as given),
- provide a command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```