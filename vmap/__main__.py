import sys

from vmap.demo import main

sys.exit(main())
