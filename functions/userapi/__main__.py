from userapi.entrypoint import main

raise SystemExit(main())
