"""kbuild - Go 单仓多目标多平台构建编排"""

__version__ = "0.1.0"
