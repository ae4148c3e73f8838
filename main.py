import sys

from stableflow.main import main

if __name__ == "__main__":
    sys.exit(main())
