import sys

from fingerspell.main import main

sys.exit(main())
