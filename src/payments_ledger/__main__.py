import sys

from payments_ledger.main import main

sys.exit(main())
