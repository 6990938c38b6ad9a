import sys

from stretchpy.cli.stretch import main

sys.exit(main())
