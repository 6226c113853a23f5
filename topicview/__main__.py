from topicview.cli import main

main()
