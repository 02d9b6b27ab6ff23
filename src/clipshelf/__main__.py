import sys

from clipshelf.main import main

sys.exit(main())
