from rowwrap.config.core import main

raise SystemExit(main())
