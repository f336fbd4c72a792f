from __future__ import annotations

from workload.server import serve


def main() -> None:
    serve()


if __name__ == "__main__":
    main()
