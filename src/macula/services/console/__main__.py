import sys

from macula.services.console.main import main

sys.exit(main())
