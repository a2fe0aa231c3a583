import pytest

from layertree.glob_parser import (
    SearchBasis,
    SearchRequest,
    clean_glob,
    parse_glob,
    parse_glob_basename,
    remove_redundant_count_glob,
    simplify_glob_recursion,
    simplify_multiple_glob_asterisks,
    split_at_basename,
)

R = SearchRequest
B = SearchBasis


@pytest.mark.parametrize(
    "glob,want",
    [
        ("foo/bar/basename.txt", [R(B.FULL_PATH, "foo/bar/basename.txt")]),
        ("/foo/bar/basename.txt", [R(B.FULL_PATH, "/foo/bar/basename.txt")]),
        ("*.txt", [R(B.EXTENSION, ".txt")]),
        ("**/*.txt", [R(B.EXTENSION, ".txt", "**/*.txt")]),
        ("bas*nam?.txt", [R(B.BASENAME_GLOB, "bas*nam?.txt")]),
        ("foo/bar/**/*.txt", [R(B.EXTENSION, ".txt", "foo/bar/**/*.txt")]),
        ("basename.txt", [R(B.FULL_PATH, "basename.txt")]),
        ("**/basename.txt", [R(B.BASENAME, "basename.txt")]),
        ("foo/b*/basename.txt", [R(B.BASENAME, "basename.txt", "foo/b*/basename.txt")]),
        ("basename.*", [R(B.BASENAME_GLOB, "basename.*")]),
        ("**/foo/bar/basename.*", [R(B.BASENAME_GLOB, "basename.*", "**/foo/bar/basename.*")]),
        ("**/foo/bar/basenam?.txt", [R(B.BASENAME_GLOB, "basenam?.txt", "**/foo/bar/basenam?.txt")]),
        (
            "**/foo/bar/basena[me][me].txt",
            [R(B.BASENAME_GLOB, "basena[me][me].txt", "**/foo/bar/basena[me][me].txt")],
        ),
        (
            "**/foo/[bB]ar/basena[me][me].txt",
            [R(B.BASENAME_GLOB, "basena[me][me].txt", "**/foo/[bB]ar/basena[me][me].txt")],
        ),
        (
            "**/foo/bar/{nested/basena[me][me].txt,another.txt}",
            [R(B.GLOB, "**/foo/bar/{nested/basena[me][me].txt,another.txt}")],
        ),
        (
            "**/foo/bar/[me][m/e].txt,another.txt",
            [R(B.GLOB, "**/foo/bar/[me][m/e].txt,another.txt")],
        ),
        (
            "**/var/lib/rpm/{Packages,Packages.db,rpmdb.sqlite}",
            [
                R(B.BASENAME, "Packages", "**/var/lib/rpm/{Packages,Packages.db,rpmdb.sqlite}"),
                R(B.BASENAME, "Packages.db", "**/var/lib/rpm/{Packages,Packages.db,rpmdb.sqlite}"),
                R(B.BASENAME, "rpmdb.sqlite", "**/var/lib/rpm/{Packages,Packages.db,rpmdb.sqlite}"),
            ],
        ),
        (
            "**/var/lib/rpm/{Packa{ges}{GES},Packages.db,rpmdb.sqlite}",
            [
                R(
                    B.BASENAME_GLOB,
                    "{Packa{ges}{GES},Packages.db,rpmdb.sqlite}",
                    "**/var/lib/rpm/{Packa{ges}{GES},Packages.db,rpmdb.sqlite}",
                )
            ],
        ),
        (
            "**/var/lib/rpm/{Pack???s,Packages.db,rpm*.sqlite}",
            [
                R(B.BASENAME_GLOB, "Pack???s", "**/var/lib/rpm/{Pack???s,Packages.db,rpm*.sqlite}"),
                R(B.BASENAME, "Packages.db", "**/var/lib/rpm/{Pack???s,Packages.db,rpm*.sqlite}"),
                R(B.BASENAME_GLOB, "rpm*.sqlite", "**/var/lib/rpm/{Pack???s,Packages.db,rpm*.sqlite}"),
            ],
        ),
        ("**/foo/bar/**?/**", [R(B.GLOB, "**/foo/bar/*?/**")]),
        ("**/foo/bar/*", [R(B.SUB_DIRECTORY, "bar", "**/foo/bar")]),
        ("", [R(B.FULL_PATH)]),
        ("/", [R(B.FULL_PATH, "/")]),
        ("///", [R(B.FULL_PATH, "/")]),
        ("/foo/b*r/", [R(B.BASENAME_GLOB, "b*r", "/foo/b*r")]),
        ("**/foo/b*r/*", [R(B.GLOB, "**/foo/b*r/*")]),
        ("**/foo/b*r/**", [R(B.GLOB, "**/foo/b*r/**")]),
        (" /foo/b*r/ .txt ", [R(B.BASENAME, " .txt", "/foo/b*r/ .txt")]),
        ("**/foo/bar/***.*****.******", [R(B.BASENAME_GLOB, "*.*.*", "**/foo/bar/*.*.*")]),
        (
            "**/foo/**.***.****bar/***thin*.txt",
            [R(B.BASENAME_GLOB, "*thin*.txt", "**/foo/*.*.*bar/*thin*.txt")],
        ),
    ],
)
def test_parse_glob(glob, want):
    assert parse_glob(glob) == want


@pytest.mark.parametrize(
    "basename,want",
    [
        ("", [R(B.BASENAME)]),
        ("*?", [R(B.GLOB)]),
        ("**", [R(B.GLOB)]),
        ("basename.txt", [R(B.BASENAME, "basename.txt")]),
        ("*basename.txt", [R(B.BASENAME_GLOB, "*basename.txt")]),
        ("bas*nam?.txt", [R(B.BASENAME_GLOB, "bas*nam?.txt")]),
        ("*.txt", [R(B.EXTENSION, ".txt")]),
        ("*.*.txt", [R(B.BASENAME_GLOB, "*.*.txt")]),
        (".txt", [R(B.BASENAME, ".txt")]),
        ("*thin*.txt", [R(B.BASENAME_GLOB, "*thin*.txt")]),
        (
            "{Packages,Packages.db,rpmdb.sqlite}",
            [
                R(B.BASENAME, "Packages"),
                R(B.BASENAME, "Packages.db"),
                R(B.BASENAME, "rpmdb.sqlite"),
            ],
        ),
    ],
)
def test_parse_glob_basename(basename, want):
    assert parse_glob_basename(basename) == want


@pytest.mark.parametrize(
    "glob,want",
    [
        ("", ""),
        (" **/foo/ **/ bar.txt  ", "**/foo/ */ bar.txt"),
        ("///foo/////**///**////", "/foo/**"),
        ("**/foo/**/*/***/*bar**/***.*****.******", "**/foo/**/*/**/*bar*/*.*.*"),
        ("***/foo.txt", "**/foo.txt"),
        ("bar**/ba**r*/***/**/bar***/**/foo.txt", "bar*/ba*r*/**/bar*/**/foo.txt"),
        ("***/foo/**/****", "**/foo/**"),
        ("/**/**/foo/**/**", "**/foo/**"),
        ("/***/****///foo/**//****////", "**/foo/**"),
    ],
)
def test_clean_glob(glob, want):
    assert clean_glob(glob) == want


@pytest.mark.parametrize(
    "glob,val,count,want",
    [
        ("", "*", 1, ""),
        ("**/foo/***/****", "*", 2, "**/foo/**/**"),
        ("///something/**///here?/*/will//work///", "/", 1, "/something/**/here?/*/will/work/"),
    ],
)
def test_remove_redundant_count_glob(glob, val, count, want):
    assert remove_redundant_count_glob(glob, val, count) == want


@pytest.mark.parametrize(
    "glob,want",
    [
        ("foo/.***", "foo/.*"),
        ("**/bar**/foo.txt", "**/bar*/foo.txt"),
        ("bar**/ba**r*/**/**/bar**/**/foo.txt", "bar*/ba*r*/**/**/bar*/**/foo.txt"),
        ("bar**/foo.txt", "bar*/foo.txt"),
    ],
)
def test_simplify_multiple_glob_asterisks(glob, want):
    assert simplify_multiple_glob_asterisks(glob) == want


@pytest.mark.parametrize(
    "glob,want",
    [
        ("/**", "**"),
        ("**/", "**"),
        ("**/**/fo*o/**/**", "**/fo*o/**"),
        ("/fo*o/**/**/bar", "/fo*o/**/bar"),
        ("/**/**/foo/**/**", "**/foo/**"),
    ],
)
def test_simplify_glob_recursion(glob, want):
    assert simplify_glob_recursion(glob) == want


def test_split_at_basename():
    assert split_at_basename("**/foo/bar/*") == ("**/foo/bar", "*")
    assert split_at_basename("basename.txt") == ("", "basename.txt")
    assert split_at_basename("foo/") == ("", "")


def test_search_request_str():
    assert str(R(B.EXTENSION, ".txt", "**/*.txt")) == "extension: .txt (requirement: **/*.txt)"
    assert str(R(B.FULL_PATH, "/")) == "full-path: /"


@pytest.mark.parametrize(
    "basis,name",
    [
        (B.GLOB, "glob"),
        (B.FULL_PATH, "full-path"),
        (B.EXTENSION, "extension"),
        (B.BASENAME, "basename"),
        (B.BASENAME_GLOB, "basename-glob"),
        (B.SUB_DIRECTORY, "subdirectory"),
    ],
)
def test_search_basis_str(basis, name):
    assert str(basis) == name