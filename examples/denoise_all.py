import sys

from mcdenoise.scenarios import main

sys.exit(main())
