import sys

from filteredfs.cli import main

sys.exit(main())
