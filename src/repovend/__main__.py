import sys

from repovend.cli._dispatcher import main

sys.exit(main())
