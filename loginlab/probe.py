# probe.py
"""
Lockout probe (safe): ONLY targets localhost.
Tries a wordlist against a loginlab server and backs off whenever the
username gets locked, so the throttle can be watched end to end.
Usage example:
loginlab-probe --url http://127.0.0.1:3000/login --username alice --wordlist wordlist.txt --threads 2 --delay 0.2
"""

import argparse
import sys
import threading
import time
from collections import Counter
from queue import Empty, Queue
from urllib.parse import urlparse

import requests

FOUND = "found"
LOCKED = "locked"
MISS = "miss"

SUCCESS_PATHS = ("/welcome", "/admin")
# connection errors tolerated per password before it is skipped
MAX_RETRIES = 3


def is_localhost(url):
    host = urlparse(url).hostname
    # allow localhost addresses only
    return host in ("127.0.0.1", "localhost", "::1")


def classify(resp):
    """Map a /login response to (outcome, retry_after_seconds)."""
    if resp.status_code == 429:
        try:
            retry = float(resp.headers.get("Retry-After", 0))
        except ValueError:
            retry = 0.0
        return LOCKED, retry
    if resp.status_code in (301, 302, 303):
        path = urlparse(resp.headers.get("Location", "")).path
        if path in SUCCESS_PATHS:
            return FOUND, 0.0
    return MISS, 0.0


def worker(q, stop_event, args, session, tried_lock, tried_set, errors):
    while not stop_event.is_set():
        try:
            pw = q.get_nowait()
        except Empty:
            break
        with tried_lock:
            if pw in tried_set:
                q.task_done()
                continue
            tried_set.add(pw)
        try:
            resp = session.post(args.url, data={"username": args.username, "password": pw},
                                timeout=6, allow_redirects=False)
        except requests.RequestException as e:
            with tried_lock:
                errors[pw] += 1
                give_up = errors[pw] >= MAX_RETRIES
                if not give_up:
                    tried_set.discard(pw)
            if give_up:
                print(f"[!] request error for '{pw}': {e} (giving up after {MAX_RETRIES} tries)")
            else:
                print(f"[!] request error for '{pw}': {e} (retrying)")
                q.put(pw)
            q.task_done()
            time.sleep(args.delay)
            continue

        outcome, retry = classify(resp)
        if outcome == LOCKED:
            wait = max(retry, args.delay * 5, 1.0)
            print(f"[!] '{args.username}' is locked. Waiting {wait:.0f}s...")
            # not actually tried; let it go through again after the wait
            with tried_lock:
                tried_set.discard(pw)
            q.put(pw)
            q.task_done()
            stop_event.wait(wait)
            continue

        if outcome == FOUND:
            print(f"[+] PASSWORD FOUND: {pw}")
            with open(args.output, "w") as f:
                f.write(pw + "\n")
            stop_event.set()
            q.task_done()
            break

        print(f"[-] tried: {pw} (status {resp.status_code})")
        q.task_done()
        time.sleep(args.delay)


def build_parser():
    parser = argparse.ArgumentParser(description="Lockout probe for a loginlab server (localhost only)")
    parser.add_argument("--url", required=True, help="Login URL (must be localhost)")
    parser.add_argument("--username", required=True)
    parser.add_argument("--wordlist", required=True)
    parser.add_argument("--threads", type=int, default=2)
    parser.add_argument("--delay", type=float, default=0.1, help="Delay between attempts per worker (seconds)")
    parser.add_argument("--output", default="found.txt", help="Where to write a found password")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if not is_localhost(args.url):
        print("ERROR: This tool only runs against localhost addresses. Set --url to http://127.0.0.1:3000/login")
        sys.exit(1)

    with open(args.wordlist, "r", encoding="utf-8", errors="ignore") as f:
        words = [line.strip() for line in f if line.strip()]

    q = Queue()
    for w in words:
        q.put(w)

    stop_event = threading.Event()
    tried_lock = threading.Lock()
    tried_set = set()
    errors = Counter()

    session = requests.Session()
    workers = []
    for _ in range(args.threads):
        t = threading.Thread(target=worker, args=(q, stop_event, args, session, tried_lock, tried_set, errors), daemon=True)
        t.start()
        workers.append(t)

    interrupted = False
    try:
        while any(t.is_alive() for t in workers):
            if stop_event.is_set():
                break
            time.sleep(0.3)
    except KeyboardInterrupt:
        print("[*] Interrupted by user. Stopping...")
        interrupted = True
        stop_event.set()

    for t in workers:
        t.join(timeout=1)

    if stop_event.is_set() and not interrupted:
        print(f"[*] Done: password found (check {args.output}).")
        return 0
    print("[*] Finished: no password found in wordlist.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
