from treecopier.cli import main


raise SystemExit(main())
