import sys

from quotaview.main import main

sys.exit(main())
