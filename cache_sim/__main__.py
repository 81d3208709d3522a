import sys

from cache_sim.cli import main

sys.exit(main())
