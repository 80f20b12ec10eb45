"""Operator command line for the forum connector.

Examples:
    forum-connector users
    forum-connector add-member --group 11 --user 42
    forum-connector rename --user 42 --name "New Name"
"""
from __future__ import annotations
import argparse
import os
import sys
from typing import Optional, Sequence

from forum_connector.config import load_settings
from forum_connector.core.forum import DirectoryClient, ForumError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forum membership connector")
    parser.add_argument("--community-url", default=None,
                        help="Override FORUM_COMMUNITY_URL")
    parser.add_argument("--operator", default=os.environ.get("USER", "cli"),
                        help="Operator identifier for audit logs")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("users", help="List every forum member")
    sub.add_parser("groups", help="List every forum group")

    su = sub.add_parser("user", help="Show one member and its groups")
    su.add_argument("--user", required=True)

    sa = sub.add_parser("add-member")
    sa.add_argument("--group", required=True)
    sa.add_argument("--user", required=True)

    sr = sub.add_parser("remove-member")
    sr.add_argument("--group", required=True)
    sr.add_argument("--user", required=True)

    sn = sub.add_parser("rename")
    sn.add_argument("--user", required=True)
    sn.add_argument("--name", required=True)

    return parser


def _format_user(user) -> str:
    groups = ",".join(sorted(user.group_ids, key=lambda gid: (len(gid), gid)))
    return f"{user.id}\t{user.name}\t{user.unique_id}\t{groups}"


def main(argv: Optional[Sequence[str]] = None, directory: Optional[DirectoryClient] = None) -> int:
    """Command-line entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    try:
        if directory is None:
            cfg = load_settings()
            if args.community_url:
                cfg.community_url = args.community_url
            directory = DirectoryClient.from_settings(cfg)

        if args.cmd == "users":
            for user in directory.get_users():
                print(_format_user(user))
        elif args.cmd == "groups":
            for group in directory.get_sets():
                print(f"{group.id}\t{group.name}")
        elif args.cmd == "user":
            print(_format_user(directory.get_user(args.user)))
        elif args.cmd in ("add-member", "remove-member"):
            group = directory.get_set(args.group)
            if group is None:
                print(f"[forums] Group {args.group} does not exist", file=sys.stderr)
                return 1
            user = directory.get_user(args.user)
            if args.cmd == "add-member":
                group.add_member(user, operator=args.operator)
            else:
                group.remove_member(user, operator=args.operator)
            print(_format_user(user))
        elif args.cmd == "rename":
            user = directory.get_user(args.user)
            user.set_name(args.name, operator=args.operator)
            print(_format_user(user))
    except ForumError as exc:
        print(f"[forums] {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
