#!/usr/bin/env python3
"""
Run all integration tests in parallel

Every test/integration/test_*.py is a standalone unittest script; each runs
in its own interpreter, so sealed hierarchies declared by one script never
see the matches registered by another.
"""

import subprocess
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Tuple

GREEN = '\033[92m'
RED = '\033[91m'
YELLOW = '\033[93m'
BLUE = '\033[94m'
RESET = '\033[0m'
BOLD = '\033[1m'

WORKSPACE = Path(__file__).parent.parent


def run_single_test(test_file: Path) -> Tuple[str, bool, str, float]:
    """Run one script; returns (name, passed, output, seconds)."""
    start = time.time()
    try:
        result = subprocess.run(
            [sys.executable, str(test_file)],
            capture_output=True,
            text=True,
            timeout=60,
            cwd=WORKSPACE
        )
    except subprocess.TimeoutExpired:
        return test_file.stem, False, "Test timed out after 60 seconds", time.time() - start
    output = result.stdout + "\n" + result.stderr
    return test_file.stem, result.returncode == 0, output, time.time() - start


def failure_lines(output: str) -> list:
    """Lines from the first FAIL/ERROR block of unittest output."""
    lines = [l.rstrip() for l in output.splitlines()]
    for i, line in enumerate(lines):
        if line.startswith(('FAIL:', 'ERROR:')) or 'Traceback' in line:
            return [l for l in lines[i:i + 12] if l.strip()]
    return [l for l in lines if l.strip()][-8:]


def main():
    print(f"\n{BOLD}{BLUE}{'pysealed - Integration Test Suite (Parallel)':^70}{RESET}\n")

    test_files = sorted((WORKSPACE / "test" / "integration").glob("test_*.py"))
    if not test_files:
        print(f"{YELLOW}No integration test files found{RESET}")
        return 0

    results = []
    with ProcessPoolExecutor(max_workers=8) as executor:
        futures = [executor.submit(run_single_test, f) for f in test_files]
        for future in as_completed(futures):
            name, passed, output, duration = future.result()
            status = f"{GREEN}OK{RESET}" if passed else f"{RED}FAIL{RESET}"
            print(f"{status} {name} ({duration:.2f}s)")
            results.append((name, passed, output))

    failed = sorted((r for r in results if not r[1]), key=lambda r: r[0])
    for name, _, output in failed:
        print(f"\n{RED}FAIL{RESET} {name}")
        for line in failure_lines(output):
            print(f"    {line}")

    print(f"\n{BOLD}Total: {len(results)}{RESET}")
    print(f"{GREEN}Passed: {len(results) - len(failed)}{RESET}")
    print(f"{RED}Failed: {len(failed)}{RESET}\n")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
