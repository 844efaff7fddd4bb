import sys

from langsync.cli import main

sys.exit(main())
