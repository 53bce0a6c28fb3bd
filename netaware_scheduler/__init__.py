"""
网络感知调度器

只调度声明了本调度器的Pod：根据各节点的CPU频率、内存占用、
网卡收发包数、iperf3带宽和磁盘在途IO为节点打分，并将Pod绑定到得分最高的节点。
"""

__version__ = "1.0.0"
__description__ = "基于节点实时遥测的Kubernetes网络感知调度器"
__author__ = "Edge Scheduler Team"
