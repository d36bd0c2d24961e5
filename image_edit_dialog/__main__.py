from image_edit_dialog.app import main

main()
