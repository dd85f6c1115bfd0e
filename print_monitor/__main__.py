import sys

from print_monitor.service import run


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
