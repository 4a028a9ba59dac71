from browser_session.cli import main

main()
