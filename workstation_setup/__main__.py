import sys

from workstation_setup.cli import main

if __name__ == "__main__":
    sys.exit(main())
