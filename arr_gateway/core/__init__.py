"""核心模块：配置、日志、错误类型"""
