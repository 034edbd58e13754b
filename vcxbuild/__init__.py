"""Build-script helpers: .vcxproj reading, vcpkg lookup and static-library building."""

__version__ = "0.1.1"