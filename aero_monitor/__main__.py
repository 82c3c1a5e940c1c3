import sys

from aero_monitor.cli import main

sys.exit(main())
