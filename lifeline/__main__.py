from lifeline.app import main

main()
