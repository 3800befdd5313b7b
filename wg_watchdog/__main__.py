import sys

from wg_watchdog.cli import main

sys.exit(main())
