"""工具模块.

主要工具:
- structlog_config: 结构化日志配置
- route_safety: 调度层日志与异常记录助手
- request_payload: 请求参数解码与清洗
- response_utils: 统一错误响应
- pagination_utils: 分页参数解析
- inflection: 资源名称单复数转换
- spreadsheet_formula_safety: CSV 公式注入防护
"""
