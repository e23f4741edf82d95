"""chunkmend 项目使用的常量定义。"""

MIB = 1024 * 1024
DEFAULT_CHUNK_MIB = 100
DEFAULT_ALGORITHM = "md5"
DEFAULT_CONFIG_FILE = "chunkmend.yaml"
DEFAULT_BLOCK_PREFIX = "BLOCK_"
DEFAULT_MANIFEST_SUFFIX = ".chunksums"
DEFAULT_PROGRAM = "chunkmend"

# 进程退出码
EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_USAGE = 2
EXIT_INPUT = 3
EXIT_UNSUPPORTED = 4

# 单次磁盘读取上限，保证峰值内存不超过单块
READ_CHUNK_SIZE = 4 * 1024 * 1024
