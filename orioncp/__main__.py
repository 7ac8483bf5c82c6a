import sys

from orioncp.cli import main

sys.exit(main())
