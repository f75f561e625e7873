from prvsix import extension_manager

extension_manager.main()
