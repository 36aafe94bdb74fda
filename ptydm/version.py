short_version = '0.1.0'
version = '0.1.0'
release = False

if not release:
    version += '.dev'
