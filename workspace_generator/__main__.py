from workspace_generator.cli import main

main()
