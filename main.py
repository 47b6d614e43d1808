#!/usr/bin/env python3
"""
authgate -- request-time authentication gateway.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py check
  python main.py check --secrets-file /etc/authgate/secrets.json

Environment variables:
  SECRET_KEY     Session signing key (>= 32 chars). Required unless DEBUG=true.
  SECRETS_FILE   Path to the JSON secrets document (default: secrets.json).
  SECRETS_JSON   Inline secrets document; wins over SECRETS_FILE.
"""

import argparse
import sys
from typing import Optional

from core.config import SecretsSettings
from core.secrets_file import SecretsError, load_secrets


def _check(settings: SecretsSettings) -> int:
    """Validate the secrets document and print what it configures.

    Passwords and client secrets are never printed.
    """
    try:
        secrets = load_secrets(settings)
    except SecretsError as e:
        print(f"  [!] {e}")
        return 1

    print("\nauthgate: configuration check")
    print("─" * 40)
    print(f"Local users: {len(secrets.users)}")
    for user in secrets.users:
        print(f"  - {user.username}")
    if secrets.google is not None:
        print(f"Google provider: configured (callback {secrets.google.callback_url})")
    else:
        print("Google provider: not configured")
    return 0


def _serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=host, port=port, reload=reload)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="authgate",
        description="Authentication gateway: local Basic login, Google OAuth, sessions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 8080
  python main.py check
  SECRETS_FILE=/etc/authgate/secrets.json python main.py check
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the gateway with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")

    check = sub.add_parser("check", help="Validate the secrets document")
    check.add_argument(
        "--secrets-file",
        metavar="PATH",
        help="Secrets document to check instead of SECRETS_FILE",
    )

    args = parser.parse_args(argv)

    if args.command == "serve":
        return _serve(args.host, args.port, args.reload)

    if args.command == "check":
        # SecretsSettings carries no SECRET_KEY policy: check runs without a key.
        settings = SecretsSettings()
        if args.secrets_file:
            settings = settings.model_copy(update={"secrets_file": args.secrets_file, "secrets_json": ""})
        return _check(settings)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
