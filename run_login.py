#run_login.py
"""Logs one account into the Steam client from the console.

    Start the client first; the script finds its login window, works out which screen it is on and keeps driving it until the login is accepted, rejected, or you press Ctrl+C.
    Accounts with a shared secret get their passcode typed in automatically.
    If the main client window takes more than a minute to show up you are asked whether to keep waiting.

Check logs/audit/ for the markdown trail of every state the login window went through, and data/signatures.db for the layouts it has seen."""

import argparse
import getpass
import logging
import os
import sys

from samlogin.core import LoginOracle
from samlogin.states import Credentials, WaitDecision
from samlogin.utils.watchdog import request_cancel_all


def ask_to_skip():
    answer = input("Steam has been loading for over 60 seconds. Skip this account? [y/N] ")
    return WaitDecision.SKIP if answer.strip().lower().startswith("y") else WaitDecision.KEEP_WAITING


def parse_args(argv):
    parser = argparse.ArgumentParser(description="Automated Steam client login")
    parser.add_argument("username")
    parser.add_argument("--password", default=os.environ.get("SAM_PASSWORD"))
    parser.add_argument("--secret", default=os.environ.get("SAM_SHARED_SECRET"),
                        help="base64 Steam Guard shared_secret (from the .maFile)")
    parser.add_argument("--remember", action="store_true")
    parser.add_argument("--log-dir", default="logs/audit")
    parser.add_argument("--db", default="data/signatures.db")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    credentials = Credentials(args.username, password, remember=args.remember)

    oracle = LoginOracle(log_dir=args.log_dir, db_path=args.db)
    print(f"--- Logging in {args.username} ---")

    try:
        if oracle.is_client_updating():
            print("[Login] Client is updating, the login window will follow.")
        result = oracle.login(credentials, secret=args.secret, decide=ask_to_skip)
    except KeyboardInterrupt:
        request_cancel_all()
        print("[Login] Cancelled.")
        return 1

    if result.succeeded:
        print(f"[Login] {args.username} logged in.")
        return 0
    print(f"[Login] Login ended in state {result.state.value}.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
