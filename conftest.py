"""
测试配置文件
"""

import os
import sys

# 添加src目录到Python路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "src")))
