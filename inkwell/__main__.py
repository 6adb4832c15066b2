from inkwell.cli import main

raise SystemExit(main())
