"""bowerpy - 前端依赖包安装器"""

__version__ = "0.3.0"
