import sys

from gitflow_enforcer.cli import main

sys.exit(main())
