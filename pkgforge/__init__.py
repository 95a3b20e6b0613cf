"""pkgforge - 多组件软件打包的源码拉取与增量构建缓存"""

__version__ = "0.4.0"
