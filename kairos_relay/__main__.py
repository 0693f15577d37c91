from kairos_relay.cli import main

raise SystemExit(main())
