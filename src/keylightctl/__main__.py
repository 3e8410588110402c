import sys

from keylightctl.cli import main

sys.exit(main())
