from guest_agent.cli import main

raise SystemExit(main())
