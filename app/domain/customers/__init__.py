"""Customer domain - customers and vehicles"""
