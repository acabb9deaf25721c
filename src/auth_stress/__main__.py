import sys

from auth_stress.cli import main

sys.exit(main())
