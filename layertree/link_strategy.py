"""Options and strategies for following links during path lookups."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class LinkResolutionOption(IntEnum):
    """A single link resolution rule."""

    # link resolution for all ancestors of a path; meant for use inside the package
    FOLLOW_ANCESTOR_LINKS = 0
    # link resolution for the basename of a path (not its ancestors)
    FOLLOW_BASENAME_LINKS = 1
    # when basename resolution ends in a dead link, return the last link that exists instead
    DO_NOT_FOLLOW_DEAD_BASENAME_LINKS = 2


@dataclass(frozen=True)
class LinkResolutionStrategy:
    """The full set of link resolution rules and whether each applies."""

    follow_ancestor_links: bool = False
    follow_basename_links: bool = False
    do_not_follow_dead_basename_links: bool = False

    def follow_links(self) -> bool:
        """Whether links are followed at all, in ancestors or in the basename."""
        return self.follow_ancestor_links or self.follow_basename_links


def new_link_resolution_strategy(*options: LinkResolutionOption) -> LinkResolutionStrategy:
    """Build a strategy from the given options."""
    chosen = set(options)
    return LinkResolutionStrategy(
        follow_ancestor_links=LinkResolutionOption.FOLLOW_ANCESTOR_LINKS in chosen,
        follow_basename_links=LinkResolutionOption.FOLLOW_BASENAME_LINKS in chosen,
        do_not_follow_dead_basename_links=(
            LinkResolutionOption.DO_NOT_FOLLOW_DEAD_BASENAME_LINKS in chosen
        ),
    )